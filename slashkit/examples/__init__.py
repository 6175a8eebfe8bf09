"""Example commands and an aiohttp webhook server that serves them."""
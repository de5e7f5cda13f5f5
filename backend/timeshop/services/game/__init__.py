"""Game economy: coin thresholds and the card draw.

Pure functions shared by the session timer on the client side and by the
HTTP layer, kept free of transport and storage concerns.
"""

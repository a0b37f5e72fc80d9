"""
Alice bot - Telegram front end for the photo-to-cartoon flow.
"""

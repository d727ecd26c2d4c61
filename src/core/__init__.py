"""Core domain package for wellbots.

Core contains rule tables, classification, response selection and turn
bookkeeping without any HTTP or storage-specific code, keeping the bot logic
portable.
"""

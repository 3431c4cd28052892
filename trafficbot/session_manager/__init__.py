"""Browser sessions, navigation strategies and the bot session service."""

"""Core codecs shared by the containers and engines."""

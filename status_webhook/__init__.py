"""Minecraft server status monitor that mirrors ONLINE/OFFLINE changes to a Discord webhook."""

__version__ = "0.1.0"

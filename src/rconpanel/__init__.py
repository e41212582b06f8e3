"""Source RCON client and parsers for Minecraft server replies."""

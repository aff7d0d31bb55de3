"""SkyQuest game backend: catalog, game engine and realtime hub."""

"""Core libraries for the Contest Hub content API."""

"""Agents that play the Blocktopia environment."""

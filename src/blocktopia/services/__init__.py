"""Collaborators the engine talks to: persistence and notifications."""

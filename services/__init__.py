"""Content services: Notion access, FAQ cache and concept composition."""

"""
lifebus - Inter-agent signal bus for a personal automation system

Scheduled agents (career, health, finance, learning, briefings, chat bot)
publish small structured signals to a shared store and read the ones
addressed to them, so one domain's state can shape another domain's messages.
"""

__version__ = "0.1.0"
__author__ = "lifebus Team"

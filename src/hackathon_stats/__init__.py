"""hackathon-stats: hackathon leaderboards from GitHub activity."""

__version__ = "0.1.0"

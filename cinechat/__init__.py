"""CineChat — conversational movie & TV recommendations over TMDB."""

__version__ = "1.0.0"

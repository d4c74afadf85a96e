"""LIFEGRID web application."""

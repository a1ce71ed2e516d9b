"""Scheduled archiver for the Citi Bike GBFS station_status feed."""

__version__ = "0.1.0"

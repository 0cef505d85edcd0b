"""Pydantic models for the video spec and timeline results."""

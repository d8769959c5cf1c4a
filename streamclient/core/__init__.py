"""Core building blocks shared across the streamclient package."""

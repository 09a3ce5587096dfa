"""Adapters exposing third-party optimisers through the ask/tell protocol."""

"""Render backends turning installed components into manifest files."""

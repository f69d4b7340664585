"""Configuration and logging shared by the library and the CLI."""

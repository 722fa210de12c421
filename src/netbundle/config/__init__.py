"""Configuration layer: TOML discovery, section models, unified settings, logging."""

"""Core domain: entities, processing stages and detectors."""

"""Plugin implementations for scaffolder."""

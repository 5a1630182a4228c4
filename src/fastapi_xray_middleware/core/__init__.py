"""Framework-independent formatting, header and segment helpers."""

"""STAR story generation from professional feedback exports."""

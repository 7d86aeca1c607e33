"""Website content monitor."""

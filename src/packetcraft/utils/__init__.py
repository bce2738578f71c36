"""Pure helpers shared by every protocol layer."""

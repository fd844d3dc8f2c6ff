"""AI assist handlers: task categorization and briefings."""

"""Navigation for the vision-assist app."""

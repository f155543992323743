"""Vehicle-transport missions: intake, workflow, inspection, photos and reporting."""

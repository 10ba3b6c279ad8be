"""HTTP control surface for the timeline debugger."""

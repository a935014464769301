"""Domain services. Each owns one area's business rules."""

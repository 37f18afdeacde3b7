"""Import engine: parsing, classification, transformation, reconciliation."""

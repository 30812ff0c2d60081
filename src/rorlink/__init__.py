"""Link Pure external organisations to ROR identifiers."""

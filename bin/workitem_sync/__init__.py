"""Work item record <-> note compositions of the conversion core."""

"""HTTP surface of the quote pricing portal."""

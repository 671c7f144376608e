"""Session processing: transcript extraction into review items."""

"""Component tree model, installation and generation."""

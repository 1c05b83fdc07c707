"""Configuration package; import `settings` from `ratewindow.core.config.settings`."""

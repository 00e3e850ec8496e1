"""Building marketing site: personalization, templating, scoring and site builds."""

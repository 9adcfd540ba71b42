"""Application services: commands, cross-aggregate rules, activity feed."""

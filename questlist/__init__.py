"""questlist - a task list with a game-like progression loop."""

"""Reading Buddy: leveled reading practice with progress tracking and achievements."""

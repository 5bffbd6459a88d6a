"""Agent control loop and conversation history."""

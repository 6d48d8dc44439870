"""Extensions - transports that expose the agent."""

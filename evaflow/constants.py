BLOCKED_WORKFLOW_MESSAGE = "Workflow execution blocked - check dependencies"
DEFAULT_TOOL_HISTORY_LIMIT = 100
STARTABLE_STATUSES = ("draft", "paused", "failed")
RESETTABLE_STATUSES = ("completed", "failed")

"""Alert system module."""
from alerts.engine import AlertEngine
from alerts.rules_manager import RulesManager
from alerts.channels import ActionDispatcher, ConsoleChannel, FileChannel, LogChannel

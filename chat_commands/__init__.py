"""
Chat Commands

A slash-command interpreter for chat front ends: tokenizer, parser,
schema registry and validator, plus error classification and recovery.
"""

# Logging is configured at app entry point via chat_commands/logging_utils.py
# No need to configure logging here.

__version__ = "0.1.0"
__author__ = "Chat Commands"
__description__ = "Slash-command interpreter with error classification and recovery"

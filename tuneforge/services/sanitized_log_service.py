# Copyright (c) US Inc. All rights reserved.
"""Sanitizing remote training output and classifying batch failures"""

import re
from enum import Enum
from typing import Any, Dict, Optional


class CrashReason(str, Enum):
    CONFIG_ERROR = "config_error"
    CONNECTION_ERROR = "connection_error"
    AUTHENTICATION_ERROR = "authentication_error"
    DATASET_ERROR = "dataset_error"
    TRAINING_ERROR = "training_error"
    GPU_OUT_OF_MEMORY = "gpu_out_of_memory"
    TIMEOUT = "timeout"
    STORAGE_ERROR = "storage_error"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


SENSITIVE_PATTERNS = [
    r'File\s+"[^"]*\.py[c]?"',
    r'line\s+\d+,\s+in\s+\w+',
    r'/home/[^\s]+',
    r'/root/[^\s]+',
    r'/usr/local/lib/[^\s]+',
    r'/site-packages/[^\s]+',
    r'Traceback\s+\(most recent call last\)',
    r'-----BEGIN [A-Z ]*PRIVATE KEY-----',
    r'(?i)(api[_-]?key|password|secret|token)\s*[=:]\s*\S+',
    r'sk-[A-Za-z0-9]{16,}',
]

SAFE_ERROR_PATTERNS = {
    r'CUDA out of memory|OutOfMemoryError': {
        'reason': CrashReason.GPU_OUT_OF_MEMORY,
        'user_message': 'Remote GPU ran out of memory. Try a smaller dataset or model.',
        'severity': ErrorSeverity.ERROR,
    },
    r'Permission denied|Authentication failed|auth.*fail': {
        'reason': CrashReason.AUTHENTICATION_ERROR,
        'user_message': 'Could not authenticate with the training host. Check the SSH key.',
        'severity': ErrorSeverity.ERROR,
    },
    r'Connection refused|Connection reset|Connection lost|No route to host|Name or service not known': {
        'reason': CrashReason.CONNECTION_ERROR,
        'user_message': 'Could not reach the training host.',
        'severity': ErrorSeverity.ERROR,
    },
    r'config(uration)? missing|not configured|No API key': {
        'reason': CrashReason.CONFIG_ERROR,
        'user_message': 'Training host is not configured.',
        'severity': ErrorSeverity.CRITICAL,
    },
    r'timed out|Timeout|exceeded maximum runtime': {
        'reason': CrashReason.TIMEOUT,
        'user_message': 'Training did not finish in time.',
        'severity': ErrorSeverity.WARNING,
    },
    r'No space left on device': {
        'reason': CrashReason.STORAGE_ERROR,
        'user_message': 'Training host ran out of disk space.',
        'severity': ErrorSeverity.ERROR,
    },
    r'Invalid.*(format|data)|No valid data|JSONDecodeError|ParserError': {
        'reason': CrashReason.DATASET_ERROR,
        'user_message': 'Dataset could not be read. Please check the file format.',
        'severity': ErrorSeverity.ERROR,
    },
    r'Training failed: code \d+': {
        'reason': CrashReason.TRAINING_ERROR,
        'user_message': 'The training process exited with an error.',
        'severity': ErrorSeverity.ERROR,
    },
}


class SanitizedLogService:

    def classify_failure(self, error_message: Optional[str]) -> Dict[str, Any]:
        """Map an error message to a crash reason and a message safe to show users."""
        if not error_message:
            return {
                'reason': CrashReason.UNKNOWN,
                'user_message': 'An unexpected error occurred.',
                'severity': ErrorSeverity.ERROR,
            }

        for pattern, info in SAFE_ERROR_PATTERNS.items():
            if re.search(pattern, error_message, re.IGNORECASE):
                return dict(info)

        return {
            'reason': CrashReason.UNKNOWN,
            'user_message': self.sanitize_message(error_message),
            'severity': ErrorSeverity.ERROR,
        }

    def contains_sensitive_info(self, message: str) -> bool:
        return any(re.search(pattern, message) for pattern in SENSITIVE_PATTERNS)

    def sanitize_message(self, message: str) -> str:
        sanitized = message
        for pattern in SENSITIVE_PATTERNS:
            sanitized = re.sub(pattern, '[REDACTED]', sanitized)

        sanitized = re.sub(r'\[REDACTED\](\s*\[REDACTED\])+', '[REDACTED]', sanitized)
        lines = [line.strip() for line in sanitized.split('\n') if line.strip() and line.strip() != '[REDACTED]']
        sanitized = '\n'.join(lines[:5])

        if not sanitized or sanitized == '[REDACTED]':
            return 'An internal error occurred.'
        return sanitized

    def sanitize_for_display(self, message: str) -> Optional[str]:
        """Sanitize one line of remote output for display.

        Returns None for lines that should not be shown at all (traceback frames).
        """
        if not message:
            return message

        if self.contains_sensitive_info(message):
            if 'Traceback' in message or 'File "' in message:
                return None
            sanitized = self.sanitize_message(message)
            if sanitized and sanitized != 'An internal error occurred.':
                return sanitized
            return None

        return message


sanitized_log_service = SanitizedLogService()

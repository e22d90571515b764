"""
Exception classes with built-in guidance for envelope configuration.
"""
import sys


class ConfigException(Exception):
    """Base exception for all configuration errors."""
    def __init__(self, message: str, setting_name: str = None, source: str = None, value: str = None):
        super().__init__(message)
        self.setting_name = setting_name
        self.source = source
        self.value = value
        self.guidance = self._generate_guidance()

    def _get_current_command(self):
        """Get the current command being executed."""
        if len(sys.argv) > 0:
            executable = sys.argv[0].split('/')[-1]
            args = sys.argv[1:]
            if args:
                return f"{executable} {' '.join(args)}"
            return executable
        return "unknown command"

    def _generate_guidance(self):
        """Override in subclasses to provide specific guidance."""
        return f"""
❌ Configuration error: {self}
💡 Check your configuration and try again
"""


class InvalidSettingValueException(ConfigException):
    """Raised when a setting is present but its value cannot be parsed."""
    def __init__(self, message: str, setting_name: str, source: str, value: str = None, expected: str = None):
        self.expected = expected
        super().__init__(message, setting_name=setting_name, source=source, value=value)

    def _generate_guidance(self):
        command = self._get_current_command()
        return f"""
❌ Setting '{self.setting_name}' has an invalid value {self.value!r} (from {self.source})
💡 Resolve this in one of the following ways:
   1. Fix the value: expected {self.expected or 'a valid value'}
   2. Or unset it to use the built-in default and re-run: {command}
"""


class ConfigFileException(ConfigException):
    """Raised when the envelope YAML config file exists but cannot be used."""
    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message, source=path)

    def _generate_guidance(self):
        return f"""
❌ Could not load envelope configuration from {self.path}: {self}
💡 The file must be YAML with a top-level 'envelope:' mapping, for example:
   envelope:
     cache_payload: true
     default_content_type: application/json
"""

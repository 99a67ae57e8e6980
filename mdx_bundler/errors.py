"""
Error types for the MDX bundler.

Every failure surfaces to the caller of ``bundle_mdx`` as one of these. The
messages follow the same layout: a headline, the location when one is known,
the offending line, and a hint on how to fix it.
"""


class MDXBundlerError(Exception):
    """Base class for bundler errors with location and hints."""
    kind = "Bundling Error"

    def __init__(self, message, path=None, line_number=None, column=None, context=None, suggestion=None):
        self.message = message
        self.path = path
        self.line_number = line_number
        self.column = column
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with location, context and suggestion."""
        lines = [f"\n❌ {self.kind}"]
        if self.path:
            lines.append(f" in {self.path}")
        if self.line_number:
            lines.append(f" at line {self.line_number}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.context:
            lines.append(f"   > {self.context}\n")

        if self.suggestion:
            lines.append(f"   💡 {self.suggestion}\n")

        return "".join(lines)


class ConfigurationError(MDXBundlerError):
    """Invalid caller configuration: output mode, colliding file paths."""
    kind = "Configuration Error"


class CompileError(MDXBundlerError):
    """Malformed MDX document, frontmatter block, ESM or element syntax."""
    kind = "Compilation Error"


class TransformError(MDXBundlerError):
    """The code generator rejected the intermediate component syntax."""
    kind = "Transform Error"


class BuildError(MDXBundlerError):
    """The host bundler could not resolve, load or assemble a module."""
    kind = "Build Error"

    def __init__(self, message, plugin=None, **kwargs):
        self.plugin = plugin
        super().__init__(message, **kwargs)

    def _format_error(self):
        text = super()._format_error()
        if self.plugin:
            text = text.replace(self.kind, f"{self.kind} [plugin {self.plugin}]", 1)
        return text


class CleanupError(MDXBundlerError):
    """The written bundle could not be read back or removed after the build."""
    kind = "Cleanup Error"


def get_line_context(source_code, line_number):
    """Extract the line of code from source by line number (1-based)."""
    if not source_code or line_number is None:
        return None
    source_lines = source_code.split('\n')
    if 0 < line_number <= len(source_lines):
        return source_lines[line_number - 1].strip()
    return None


def line_and_column(source_code, offset):
    """Convert a character offset into a (line, column) pair, both 1-based."""
    line = source_code.count('\n', 0, offset) + 1
    column = offset - (source_code.rfind('\n', 0, offset) + 1) + 1
    return line, column

"""Error taxonomy for the mail build.

Everything deriving from :class:`MailForgeError` is fatal for the operation
that raised it. Recoverable problems never raise; they go through
:func:`mail_forge.core.recover.try_recoverable` instead.
"""


class MailForgeError(Exception):
    pass


class ConfigurationError(MailForgeError):
    """Missing identifiers, ambiguous templates or missing entry files."""


class CompileError(MailForgeError):
    """The stylesheet compiler rejected its input."""


class RenderError(MailForgeError):
    """The template failed to load or render."""


class InlineError(MailForgeError):
    """CSS could not be inlined into the rendered HTML."""


class LocalizationError(MailForgeError):
    """A placeholder references a missing translation file or key (strict mode)."""

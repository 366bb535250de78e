"""pi-lineedit: interactive terminal line editor with completion and history."""

# Edit buffer
from pi.lineedit.buffer import EditBuffer

# Completion
from pi.lineedit.completion import (
    WINDOW,
    CompletionEngine,
    Document,
    SpacedAppend,
    Suggestion,
    SuggestionState,
    SuffixCompletion,
    VerbatimInsert,
    WordReplacement,
    accept_suggestion,
    classify_merge,
    file_completer,
)

# Fuzzy matching
from pi.lineedit.fuzzy import (
    FuzzyMatch,
    fuzzy_completer,
    fuzzy_filter,
    fuzzy_score,
    history_searcher,
)

# History
from pi.lineedit.history import (
    HistoryConfig,
    HistoryStore,
    RotationPlan,
    default_history_file,
    execute_rotation,
    expand_history_path,
    needs_rotation,
    plan_rotation,
    retained_entries,
)

# Key resolution
from pi.lineedit.keys import (
    Action,
    EscapeRecognizer,
    KeyMap,
    ResolvedKey,
)

# Session controller
from pi.lineedit.prompt import (
    HistorySearch,
    Prompt,
    PromptConfig,
    SessionResult,
    SessionState,
    file_history,
    memory_history,
)

# Rendering
from pi.lineedit.renderer import RenderState, Renderer, render_frame, render_search

# Terminal interface
from pi.lineedit.terminal import ProcessTerminal, Terminal

# Themes
from pi.lineedit.theme import (
    Color,
    ColorScheme,
    SuggestionColors,
    get_theme,
    theme_accessible,
    theme_dark,
    theme_default,
    theme_dracula,
    theme_light,
    theme_monokai,
    theme_solarized_dark,
)

# Utilities
from pi.lineedit.utils import truncate_to_width, visible_width

__all__ = [
    # Edit buffer
    "EditBuffer",
    # Completion
    "WINDOW",
    "CompletionEngine",
    "Document",
    "SpacedAppend",
    "Suggestion",
    "SuggestionState",
    "SuffixCompletion",
    "VerbatimInsert",
    "WordReplacement",
    "accept_suggestion",
    "classify_merge",
    "file_completer",
    # Fuzzy matching
    "FuzzyMatch",
    "fuzzy_completer",
    "fuzzy_filter",
    "fuzzy_score",
    "history_searcher",
    # History
    "HistoryConfig",
    "HistoryStore",
    "RotationPlan",
    "default_history_file",
    "execute_rotation",
    "expand_history_path",
    "needs_rotation",
    "plan_rotation",
    "retained_entries",
    # Key resolution
    "Action",
    "EscapeRecognizer",
    "KeyMap",
    "ResolvedKey",
    # Session controller
    "HistorySearch",
    "Prompt",
    "PromptConfig",
    "SessionResult",
    "SessionState",
    "file_history",
    "memory_history",
    # Rendering
    "RenderState",
    "Renderer",
    "render_frame",
    "render_search",
    # Terminal interface
    "ProcessTerminal",
    "Terminal",
    # Themes
    "Color",
    "ColorScheme",
    "SuggestionColors",
    "get_theme",
    "theme_accessible",
    "theme_dark",
    "theme_default",
    "theme_dracula",
    "theme_light",
    "theme_monokai",
    "theme_solarized_dark",
    # Utilities
    "truncate_to_width",
    "visible_width",
]

"""HydroLog core library: hydration log state, validation and analytics.

Public API re-exports for convenient imports:
    from hydrolog import HydrationStore, load_config, validate_custom_amount, ...
"""

# Errors
from hydrolog.errors import (
    Reason,
    HydroLogError,
    PersistenceError,
    StateCorruptedError,
)

# Models
from hydrolog.models import (
    UNSET,
    WakeHours,
    Settings,
    SettingsUpdate,
    LogEntry,
    DailyRecord,
    HistorySummary,
    HydrationState,
    PeriodStats,
    AnalyticsSummary,
)

# Calendar helpers
from hydrolog.dates import (
    to_date,
    is_same_calendar_day,
    days_elapsed,
    is_hour_active,
    start_of_week,
    start_of_month,
    now_local,
    today_local,
)

# Validation
from hydrolog.validation import (
    ValidationResult,
    validate_custom_amount,
    validate_quick_amount,
    validate_daily_target,
    validate_reminder_interval,
    validate_wake_hours,
    validate_flag,
    validate_settings_update,
)

# Analytics
from hydrolog.analytics import (
    completion_ratio,
    completion_percent,
    is_goal_completed,
    remaining_ml,
    period_stats,
    rolling_average,
    current_streak,
    longest_streak,
    streak_runs,
    compute_summary,
)

# Config & paths
from hydrolog.config import (
    AppConfig,
    data_root,
    state_path,
    load_config,
)

# Persistence
from hydrolog.storage import (
    FileStatePersistence,
    MemoryPersistence,
    export_state,
    import_state,
)

# Reminders
from hydrolog.reminders import (
    ReminderSettings,
    ReminderDecision,
    decide_reminder,
    should_pause_reminders,
)

# Hooks
from hydrolog.hooks import Hook, HookResult, run_hooks

# Store
from hydrolog.store import HydrationStore, OperationResult

# Logging
from hydrolog.logging_setup import setup_logging

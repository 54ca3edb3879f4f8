#!/usr/bin/env python3
import logging
import os
import select
import sys
import termios
import tty
from decimal import Decimal
from io import StringIO
from pathlib import Path
from typing import Callable, Optional, TypeVar

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt
from rich.table import Table
from rich.text import Text

from etf_rotation import (
    ErrorCode,
    ErrorRaised,
    HoldRecommendation,
    InvalidOperationError,
    JsonFileStore,
    MarketAnalysis,
    QuoteSource,
    RefreshCompleted,
    RefreshResult,
    RotationDashboard,
    TradeExecuted,
    TradeRecommendation,
    TradeSignal,
    build_dashboard,
    simulate_quotes,
)

logger = logging.getLogger(__name__)
console = Console()

# ANSI escape codes for terminal styling
ANSI_BOLD_CYAN = "\033[1;36m"
ANSI_DIM = "\033[2m"
ANSI_RESET = "\033[0m"
ANSI_MOVE_UP = "\033[{}A"
ANSI_CLEAR_LINE = "\033[2K\n"

DEFAULT_HOME = Path.home() / ".etf-rotation"
TRADE_LOG_LIMIT = 10

ACTIONS: list[str] = ["refresh", "follow", "trade", "log", "performance", "reset", "quit"]
ACTION_LABELS: dict[str, str] = {
    "refresh": "Refresh quotes",
    "follow": "Follow recommendation",
    "trade": "Rotate into…",
    "log": "Trade log",
    "performance": "Performance",
    "reset": "Reset portfolio",
    "quit": "Quit",
}

T = TypeVar("T")


def _signed_color(value: Decimal) -> str:
    if value > 0:
        return "green"
    return "red" if value < 0 else "white"


def _fmt_optional(value: Optional[Decimal], fmt: str = ",.2f") -> str:
    return "—" if value is None else format(value, fmt)


def quotes_table(dashboard: RotationDashboard, caption: str) -> Table:
    """Build a Rich table with the latest quote of every instrument."""
    t = Table(
        title="ETF Quotes",
        box=box.ROUNDED,
        title_style="bold white",
        caption=caption,
        caption_style="dim",
    )
    t.add_column("ETF", style="cyan")
    t.add_column("Name", style="dim")
    t.add_column("Price", justify="right")
    t.add_column("Change", justify="right")
    t.add_column("Open", justify="right")
    t.add_column("Status", style="dim")

    held = dashboard.ledger.portfolio.current_symbol
    for instrument in dashboard.registry:
        quote = dashboard.registry.quote(instrument.symbol)
        symbol = f"{instrument.symbol} ◆" if instrument.symbol == held else instrument.symbol
        if quote is None:
            t.add_row(symbol, instrument.name, "—", "—", "—", "no data")
            continue

        change = (
            Text("—")
            if quote.change_percent is None
            else Text(f"{quote.change_percent:+.2f}%", style=_signed_color(quote.change_percent))
        )
        t.add_row(
            symbol,
            instrument.name,
            f"€{_fmt_optional(quote.price)}",
            change,
            f"€{_fmt_optional(quote.open_price)}",
            quote.trading_status or "",
        )
    return t


def deltas_table(analysis: MarketAnalysis) -> Table:
    """Build a Rich table of deltas against the held instrument, best first."""
    t = Table(
        title=f"Deltas vs {analysis.reference_symbol}",
        box=box.ROUNDED,
        title_style="bold white",
    )
    t.add_column("Target", style="cyan")
    t.add_column("Delta", justify="right")
    t.add_column("Gross", justify="right")
    t.add_column("Net", justify="right")
    t.add_column("Confidence", justify="right", style="yellow")

    for d in analysis.deltas:
        t.add_row(
            d.target_symbol,
            Text(f"{d.delta:+.2f}%", style=_signed_color(d.delta)),
            f"€{d.potential_gain:,.0f}",
            Text(f"€{d.net_gain:,.0f}", style=_signed_color(d.net_gain)),
            f"{d.confidence:.0f}",
        )

    stats = analysis.stats
    t.add_section()
    t.add_row(
        "[dim]avg / σ[/dim]",
        f"[dim]{stats.average_delta:+.2f}% / {stats.volatility:.2f}[/dim]",
        "",
        "",
        f"[dim]{stats.trade_opportunities} above threshold[/dim]",
    )
    return t


def recommendation_panel(analysis: MarketAnalysis) -> Panel:
    rec = analysis.recommendation
    if rec is None:
        return Panel("[dim]Not enough data for a recommendation.[/dim]", title="Recommendation")

    if isinstance(rec, HoldRecommendation):
        return Panel(
            f"[bold]HOLD {rec.current_symbol}[/bold]\n[dim]{rec.reason}[/dim]",
            title="Recommendation",
            border_style="blue",
        )

    return Panel(
        f"[bold green]ROTATE {rec.from_symbol} → {rec.to_symbol}[/bold green]\n"
        f"Delta {rec.delta:+.2f}% · net gain €{rec.net_gain:,.0f} · "
        f"confidence {rec.confidence:.0f}\n[dim]{rec.reason}[/dim]",
        title="Recommendation",
        border_style="green",
    )


def portfolio_table(dashboard: RotationDashboard) -> Table:
    """Build a Rich table summarizing the paper portfolio."""
    stats = dashboard.portfolio_stats()
    state = dashboard.ledger.state.value

    t = Table(title=f"Paper Portfolio ({state})", box=box.ROUNDED, title_style="bold white")
    t.add_column("Holding", style="cyan")
    t.add_column("Shares", justify="right")
    t.add_column("Value", justify="right")
    t.add_column("Invested", justify="right")
    t.add_column("Performance", justify="right")
    t.add_column("Fees", justify="right", style="red")
    t.add_column("Trades", justify="right")

    t.add_row(
        stats.current_symbol,
        f"{stats.shares:,.4f}",
        f"€{stats.current_value:,.2f}",
        f"€{stats.invested_value:,.2f}",
        Text(
            f"€{stats.performance:+,.2f} ({stats.performance_percent:+.2f}%)",
            style=_signed_color(stats.performance),
        ),
        f"€{stats.total_fees:,.2f}",
        f"{stats.total_trades} ({stats.success_rate:.0f}% won)",
    )
    return t


def trade_log_table(dashboard: RotationDashboard, limit: int = TRADE_LOG_LIMIT) -> Table:
    """Build a Rich table of the most recent trades."""
    t = Table(title="Trade Log", box=box.ROUNDED, title_style="bold white")
    t.add_column("When", style="dim")
    t.add_column("Sold", style="red")
    t.add_column("Bought", style="green")
    t.add_column("Value", justify="right")
    t.add_column("Diff", justify="right")
    t.add_column("Reason", style="dim")

    for r in dashboard.trade_log(limit):
        t.add_row(
            r.timestamp.strftime("%Y-%m-%d %H:%M"),
            f"{r.sold_shares:,.4f} {r.sold_symbol} @ {r.sold_price:,.2f}",
            f"{r.bought_shares:,.4f} {r.bought_symbol} @ {r.bought_price:,.2f}",
            f"€{r.bought_value:,.2f}",
            Text(f"€{r.value_difference:+,.2f}", style=_signed_color(r.value_difference)),
            r.reason,
        )
    return t


def performance_table(dashboard: RotationDashboard) -> Table:
    """Build a Rich table with signal hit rate and the simulated return."""
    signals = dashboard.signal_performance()
    history = dashboard.historical_return()

    t = Table(title="Performance", box=box.ROUNDED, title_style="bold white", show_header=False)
    t.add_column("Metric", style="cyan")
    t.add_column("Value", justify="right")

    t.add_row("Signals emitted", str(signals.total_signals))
    t.add_row("Signal win rate", f"{signals.success_rate:.0f}%")
    t.add_row("Average net gain", f"€{signals.average_net_gain:,.2f}")
    t.add_row("Cumulative net gain", f"€{signals.total_net_gain:,.2f}")
    if signals.best_signal:
        t.add_row("Best signal", str(signals.best_signal))
    if signals.worst_signal:
        t.add_row("Worst signal", str(signals.worst_signal))

    t.add_section()
    t.add_row("Simulated final value", f"€{history.final_value:,.2f}")
    t.add_row(
        "Simulated return",
        Text(f"{history.total_return_percent:+.2f}%", style=_signed_color(history.total_return)),
    )
    t.add_row("Net of fees", f"€{history.net_return:+,.2f}")
    return t


class ConsoleNotifier:
    """Prints engine events to the console."""

    def __init__(self, out: Console) -> None:
        self.out = out

    def attach(self, dashboard: RotationDashboard) -> None:
        dashboard.bus.subscribe(TradeSignal, self.on_signal)
        dashboard.bus.subscribe(RefreshCompleted, self.on_refresh)
        dashboard.bus.subscribe(ErrorRaised, self.on_error)
        dashboard.bus.subscribe(TradeExecuted, self.on_trade)

    def on_signal(self, event: TradeSignal) -> None:
        rec: TradeRecommendation = event.recommendation
        self.out.print(
            Panel(
                f"{rec.from_symbol} → {rec.to_symbol}\n"
                f"Delta: {rec.delta:+.2f}%\nEstimated gain: €{rec.net_gain:+,.0f}",
                title="🚨 Trade signal",
                border_style="bold yellow",
            )
        )

    def on_refresh(self, event: RefreshCompleted) -> None:
        style = "green" if event.complete else "yellow"
        self.out.print(f"  [{style}]Quotes updated: {event.success_count}/{event.total_count}[/{style}]")

    def on_error(self, event: ErrorRaised) -> None:
        if event.code is ErrorCode.DATA_INSUFFICIENT:
            self.out.print(f"  [dim]{event.message}[/dim]")
        else:
            self.out.print(f"  [red]{event.message}[/red]")

    def on_trade(self, event: TradeExecuted) -> None:
        r = event.record
        self.out.print(
            f"  [bold green]✅ Trade executed:[/bold green] {r.sold_symbol} → {r.bought_symbol}, "
            f"{r.bought_shares:,.4f} shares, €{r.bought_value:,.0f}"
        )


def _rich_to_str(renderable) -> str:
    """Convert a Rich renderable to a string with ANSI codes."""
    buf = StringIO()
    Console(file=buf, width=console.width, force_terminal=True).print(renderable)
    return buf.getvalue().rstrip("\n")


def _getch() -> str:
    """Read a single keypress from stdin, handling escape sequences."""
    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        ch = os.read(fd, 1).decode()
        if ch == "\x1b" and select.select([fd], [], [], 0.05)[0]:
            ch += os.read(fd, 1).decode()
            if select.select([fd], [], [], 0.05)[0]:
                ch += os.read(fd, 1).decode()
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)
    return ch


def _render_menu(options: list[T], labels: dict[T, str], selected: int) -> str:
    lines = []
    for i, opt in enumerate(options):
        if i == selected:
            lines.append(f"{ANSI_BOLD_CYAN}  ▸ {labels[opt]}{ANSI_RESET}")
        else:
            lines.append(f"{ANSI_DIM}    {labels[opt]}{ANSI_RESET}")
    return "\n".join(lines)


def _full_render(
    options: list[T],
    labels: dict[T, str],
    selected: int,
    preview: Callable[[T], Table] | None,
) -> str:
    parts = []
    if preview:
        parts.append(_rich_to_str(preview(options[selected])))
    parts.append(_render_menu(options, labels, selected))
    return "\n".join(parts) + "\n"


def _clear_lines(count: int) -> None:
    sys.stdout.write(
        ANSI_MOVE_UP.format(count)
        + "".join(ANSI_CLEAR_LINE for _ in range(count))
        + ANSI_MOVE_UP.format(count)
    )


def pick(
    options: list[T],
    labels: dict[T, str],
    default: int = 0,
    preview: Callable[[T], Table] | None = None,
    cancellable: bool = False,
) -> Optional[T]:
    """Interactive arrow-key picker.

    ``q`` or Ctrl-C selects the last option, or returns None when
    ``cancellable`` is set.
    """
    selected = default
    cancelled = False

    output = _full_render(options, labels, selected, preview)
    sys.stdout.write(output)
    sys.stdout.flush()
    prev_lines = output.count("\n")

    while True:
        key = _getch()
        if key == "\x1b[A":
            selected = (selected - 1) % len(options)
        elif key == "\x1b[B":
            selected = (selected + 1) % len(options)
        elif key in ("\r", "\n"):
            break
        elif key in ("q", "\x03"):
            cancelled = cancellable
            selected = len(options) - 1
            break
        else:
            continue

        _clear_lines(prev_lines)
        output = _full_render(options, labels, selected, preview)
        sys.stdout.write(output)
        sys.stdout.flush()
        prev_lines = output.count("\n")

    _clear_lines(prev_lines)
    sys.stdout.flush()

    if cancelled:
        console.print("  [dim]▸ Cancelled[/dim]")
        return None

    console.print(f"  [bold cyan]▸ {labels[options[selected]]}[/bold cyan]")
    return options[selected]


def _trade_preview(symbol: str, dashboard: RotationDashboard) -> Table:
    preview = dashboard.ledger.preview_trade(symbol)
    t = Table(box=box.ROUNDED, title=f"{dashboard.ledger.portfolio.current_symbol} → {symbol}")
    t.add_column("Sale", justify="right")
    t.add_column("New value", justify="right")
    t.add_column("New shares", justify="right")
    t.add_column("Delta", justify="right")
    if preview is None:
        t.add_row("—", "—", "—", "—")
    else:
        t.add_row(
            f"€{preview.sale_value:,.2f}",
            f"€{preview.new_value:,.2f}",
            f"{preview.new_shares:,.4f}",
            Text(f"{preview.delta:+.2f}%", style=_signed_color(preview.delta)),
        )
    return t


def fetch_quotes(dashboard: RotationDashboard, source: QuoteSource) -> tuple[RefreshResult, str]:
    """Fetch live quotes, offering simulated ones if the API is unreachable."""
    with console.status("[bold]Fetching ETF quotes from Börse Frankfurt...[/bold]"):
        result = source.fetch_all(dashboard.registry)

    if result.success_count == 0 and Confirm.ask(
        "  [yellow]API unreachable.[/yellow] Use simulated quotes?", default=True
    ):
        return simulate_quotes(dashboard.registry), "simulated quotes (API unreachable)"

    return result, "Börse Frankfurt"


def show_overview(dashboard: RotationDashboard, analysis: MarketAnalysis, source: str) -> None:
    console.print(quotes_table(dashboard, source))
    if analysis.deltas:
        console.print(deltas_table(analysis))
    console.print(recommendation_panel(analysis))
    console.print(portfolio_table(dashboard))


def _rotate_into(dashboard: RotationDashboard) -> None:
    held = dashboard.ledger.portfolio.current_symbol
    targets = [s for s in dashboard.registry.symbols() if s != held]
    labels = {s: f"{s} · {dashboard.registry.get(s).name}" for s in targets}

    symbol = pick(
        targets, labels, preview=lambda s: _trade_preview(s, dashboard), cancellable=True
    )
    if symbol is None:
        return
    if Confirm.ask(f"  Sell all {held} and buy {symbol}?", default=False):
        dashboard.execute_trade(symbol)


def run_cli_loop(dashboard: RotationDashboard, source: QuoteSource) -> None:
    result, caption = fetch_quotes(dashboard, source)
    analysis = dashboard.apply_refresh(result)
    show_overview(dashboard, analysis, caption)

    while True:
        console.print()
        action = pick(ACTIONS, ACTION_LABELS)

        try:
            if action == "refresh":
                result, caption = fetch_quotes(dashboard, source)
                analysis = dashboard.apply_refresh(result)
                show_overview(dashboard, analysis, caption)
            elif action == "follow":
                dashboard.execute_recommendation()
                show_overview(dashboard, dashboard.analyze(), caption)
            elif action == "trade":
                _rotate_into(dashboard)
                show_overview(dashboard, dashboard.analyze(), caption)
            elif action == "log":
                limit = IntPrompt.ask("  How many trades", default=TRADE_LOG_LIMIT)
                console.print(trade_log_table(dashboard, limit))
            elif action == "performance":
                console.print(performance_table(dashboard))
            elif action == "reset":
                if Confirm.ask("  Reset portfolio and trade log?", default=False):
                    dashboard.reset()
                    console.print(portfolio_table(dashboard))
            else:
                break
        except InvalidOperationError as e:
            console.print(f"  [red]{e}[/red]")


def main() -> None:
    """Entry point for the CLI application."""
    logging.basicConfig(
        level=os.environ.get("ETF_ROTATION_LOG_LEVEL", "WARNING"),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    console.print()
    console.print(Panel("[bold]ETF Rotation[/bold] · delta signals & paper portfolio", box=box.DOUBLE))
    console.print()

    home = Path(os.environ.get("ETF_ROTATION_HOME", DEFAULT_HOME))
    dashboard = build_dashboard(store=JsonFileStore(home))
    ConsoleNotifier(console).attach(dashboard)

    run_cli_loop(dashboard, QuoteSource())


if __name__ == "__main__":
    main()

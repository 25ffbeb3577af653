"""Click CLI commands for macd-engine.

This is the presentation boundary: prices are parsed here, and values are
rounded to the configured precision only when printed.
"""

from __future__ import annotations

import json
import re
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import IO, Any

import click
from pydantic import ValidationError

from macd_engine.config import AppConfig, IndicatorConfig
from macd_engine.engine.ema import SeedingPolicy
from macd_engine.engine.macd import (
    MACDCalculator,
    MACDResult,
    StreamingState,
    compute_macd,
    crossover,
)
from macd_engine.errors import MACDError
from macd_engine.utils.logging import setup_logging, stream_context

_SEPARATORS = re.compile(r"[,\s]+")

POLICY_CHOICE = click.Choice([p.value for p in SeedingPolicy])


def parse_prices(text: str) -> list[Decimal]:
    """Parse comma- or whitespace-separated prices."""
    tokens = [t for t in _SEPARATORS.split(text.strip()) if t]
    prices: list[Decimal] = []
    for i, token in enumerate(tokens):
        try:
            prices.append(Decimal(token))
        except InvalidOperation as e:
            raise click.ClickException(
                f"Invalid price {token!r} at position {i + 1}"
            ) from e
    return prices


def _load_prices(prices_file: IO[str] | None, prices_opt: str | None) -> list[Decimal]:
    if prices_opt is not None and prices_file is not None:
        raise click.UsageError("Pass prices either with --prices or as a file, not both.")
    if prices_opt is not None:
        return parse_prices(prices_opt)
    if prices_file is not None:
        return parse_prices(prices_file.read())
    raise click.UsageError("No prices given. Use --prices or a PRICES_FILE ('-' for stdin).")


def _fmt(value: float | None, precision: int | None) -> float | None:
    if value is None or precision is None:
        return value
    return round(value, precision)


def _cell(value: float | None, precision: int | None) -> str:
    v = _fmt(value, precision)
    return "-" if v is None else str(v)


def _indicator_settings(
    ctx: click.Context,
    fast: int | None,
    slow: int | None,
    signal: int | None,
    policy: str | None,
    precision: int | None,
) -> IndicatorConfig:
    """Merge CLI options over the configured indicator defaults."""
    base: IndicatorConfig = ctx.obj.indicator
    return IndicatorConfig.model_construct(
        fast_period=base.fast_period if fast is None else fast,
        slow_period=base.slow_period if slow is None else slow,
        signal_period=base.signal_period if signal is None else signal,
        seeding_policy=base.seeding_policy if policy is None else SeedingPolicy(policy),
        precision=base.precision if precision is None else precision,
    )


def _period_options(func: Any) -> Any:
    func = click.option("--fast", type=int, default=None, help="Fast EMA period.")(func)
    func = click.option("--slow", type=int, default=None, help="Slow EMA period.")(func)
    func = click.option("--signal", type=int, default=None, help="Signal EMA period.")(func)
    func = click.option(
        "--precision",
        type=click.IntRange(0, 12),
        default=None,
        help="Decimal places in output (default from config).",
    )(func)
    func = click.option(
        "--prices", "prices_opt", default=None, help='Inline prices, e.g. "100,101,102".'
    )(func)
    func = click.argument("prices_file", type=click.File("r"), required=False)(func)
    return func


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """macd: MACD indicator engine (bulk and streaming)."""
    try:
        cfg = AppConfig()
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    setup_logging(level=cfg.log_level, log_format=cfg.log_format)
    ctx.obj = cfg


@cli.command()
@_period_options
@click.option("--policy", type=POLICY_CHOICE, default=None, help="EMA seeding policy.")
@click.option(
    "--format", "output_format", type=click.Choice(["table", "json"]), default="table"
)
@click.pass_context
def compute(
    ctx: click.Context,
    prices_file: IO[str] | None,
    prices_opt: str | None,
    fast: int | None,
    slow: int | None,
    signal: int | None,
    precision: int | None,
    policy: str | None,
    output_format: str,
) -> None:
    """Compute MACD, signal and histogram over a full price series."""
    settings = _indicator_settings(ctx, fast, slow, signal, policy, precision)
    prices = _load_prices(prices_file, prices_opt)

    try:
        result = compute_macd(
            prices,
            fast_period=settings.fast_period,
            slow_period=settings.slow_period,
            signal_period=settings.signal_period,
            policy=settings.seeding_policy,
        )
    except MACDError as e:
        raise click.ClickException(str(e)) from e

    if output_format == "json":
        click.echo(json.dumps(_result_rows(result, settings.precision), indent=2))
    else:
        _print_result_table(result, settings.precision)


def _result_rows(result: MACDResult, precision: int | None) -> list[dict[str, Any]]:
    return [
        {
            "day": i + 1,
            "macd": _fmt(m, precision),
            "signal": _fmt(s, precision),
            "histogram": _fmt(h, precision),
        }
        for i, m, s, h in result.rows()
    ]


def _print_result_table(result: MACDResult, precision: int | None) -> None:
    click.echo(
        f"MACD({result.fast_period},{result.slow_period},{result.signal_period}) "
        f"policy={result.policy.value}"
    )
    if result.insufficient_history:
        click.echo(
            f"Note: fewer than {result.slow_period + result.signal_period} prices; "
            "early values are undefined."
        )
    click.echo(f"{'Label':<10}{'MACD':>14}{'Signal':>14}{'Histogram':>14}")
    for i, m, s, h in result.rows():
        click.echo(
            f"{'Day ' + str(i + 1):<10}"
            f"{_cell(m, precision):>14}{_cell(s, precision):>14}{_cell(h, precision):>14}"
        )


@cli.command()
@_period_options
@click.option(
    "--state",
    "state_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Resume from a saved JSON state (its periods override --fast/--slow/--signal).",
)
@click.option(
    "--save-state",
    "save_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the final streaming state to this JSON file.",
)
@click.option("--stream-id", default="", help="Tag log events with this stream ID.")
@click.pass_context
def stream(
    ctx: click.Context,
    prices_file: IO[str] | None,
    prices_opt: str | None,
    fast: int | None,
    slow: int | None,
    signal: int | None,
    precision: int | None,
    state_path: Path | None,
    save_path: Path | None,
    stream_id: str,
) -> None:
    """Feed prices one tick at a time through the streaming engine."""
    settings = _indicator_settings(ctx, fast, slow, signal, None, precision)
    prices = _load_prices(prices_file, prices_opt)
    if not prices:
        raise click.UsageError("Price series must not be empty.")

    with stream_context(stream_id):
        try:
            if state_path is not None:
                saved = json.loads(state_path.read_text(encoding="utf-8"))
                calc = MACDCalculator.from_state(StreamingState.from_dict(saved))
            else:
                calc = MACDCalculator(
                    settings.fast_period, settings.slow_period, settings.signal_period
                )

            click.echo(
                f"{'Tick':<10}{'MACD':>14}{'Signal':>14}{'Histogram':>14}  Cross"
            )
            for i, price in enumerate(prices):
                point = calc.process_price(price)
                cross = crossover(calc.previous, point) or ""
                click.echo(
                    f"{'Day ' + str(i + 1):<10}"
                    f"{_cell(point.macd, settings.precision):>14}"
                    f"{_cell(point.signal, settings.precision):>14}"
                    f"{_cell(point.histogram, settings.precision):>14}  {cross}"
                )
        except json.JSONDecodeError as e:
            raise click.ClickException(f"State file is not valid JSON: {e}") from e
        except MACDError as e:
            raise click.ClickException(str(e)) from e

    if save_path is not None:
        save_path.write_text(json.dumps(calc.state.to_dict(), indent=2), encoding="utf-8")
        click.echo(f"State saved to {save_path}")


@cli.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Show current configuration."""
    cfg: AppConfig = ctx.obj

    click.echo("=== MACD Engine Configuration ===\n")

    click.echo(f"Log Level:    {cfg.log_level}")
    click.echo(f"Log Format:   {cfg.log_format}")
    click.echo("")

    click.echo("[Indicator]")
    click.echo(f"  Fast Period:     {cfg.indicator.fast_period}")
    click.echo(f"  Slow Period:     {cfg.indicator.slow_period}")
    click.echo(f"  Signal Period:   {cfg.indicator.signal_period}")
    click.echo(f"  Seeding Policy:  {cfg.indicator.seeding_policy.value}")
    click.echo(f"  Precision:       {cfg.indicator.precision}")

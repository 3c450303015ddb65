#!/usr/bin/env python3
"""
Offline sound level metering.

Feeds a WAV file (or a synthetic tone) through the FFT level meter block by
block and writes the recorded levels to levels.json.

Usage:
    python scripts/run_level_meter.py --input recording.wav
    python scripts/run_level_meter.py --tone 1000 --amplitude 0.1 --duration 12
    python scripts/run_level_meter.py --config configs/default.yaml --output results/run1
"""

import sys
import json
import argparse
from dataclasses import replace
from datetime import datetime
from pathlib import Path

# Add project root
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import numpy as np
from scipy.io import wavfile
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn,
)

from dsp_meter.dsp_core import peak, rms
from dsp_meter.features import LevelMeter
from dsp_meter.utils import MeterConfig, SessionLogger, load_config


console = Console()


def read_wav(path: str):
    """
    Read a WAV file as float64 samples in [-1, 1].

    Returns:
        (sample_rate, samples, interleaved) where stereo files are returned
        flattened in interleaved order
    """
    sample_rate, data = wavfile.read(path)

    if data.dtype == np.uint8:
        samples = (data.astype(np.float64) - 128) / 128
    elif np.issubdtype(data.dtype, np.integer):
        samples = data.astype(np.float64) / float(np.iinfo(data.dtype).max + 1)
    else:
        samples = data.astype(np.float64)

    if samples.ndim == 1:
        return sample_rate, samples, False
    if samples.shape[1] == 1:
        return sample_rate, samples[:, 0], False
    if samples.shape[1] == 2:
        # Row-major flatten of (frames, 2) is [l0, r0, l1, r1, ...]
        return sample_rate, samples.reshape(-1), True
    raise ValueError(f"Unsupported channel count: {samples.shape[1]}")


def synth_tone(freq: float, amplitude: float, duration: float, sample_rate: float) -> np.ndarray:
    t = np.arange(int(sample_rate * duration)) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq * t)


def display_results_table(meter: LevelMeter):
    """Display the per-block levels and the session summary."""
    summary = meter.summary()

    table = Table(title="Level Meter Results", box=box.ROUNDED)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Blocks", str(summary['count']))
    for key in ('min', 'max', 'mean', 'leq'):
        value = summary[key]
        table.add_row(f"{key.capitalize()} (dB)", "-" if value is None else f"{value:.2f}")
    table.add_row("Peak band (Hz)", f"{meter.peak_frequency:.1f}")
    table.add_row("Bandwidth (Hz)", f"{meter.fft.bandwidth:.2f}")

    console.print(table)


def run_level_meter(config: MeterConfig, samples: np.ndarray, interleaved: bool, output_dir: Path):
    """Meter a signal and save the results."""
    output_dir.mkdir(parents=True, exist_ok=True)
    session = SessionLogger('level_meter', log_dir=str(output_dir))
    session.log_config(config.to_dict())

    meter = LevelMeter(config)
    block_size = meter.fft.buffer_size * (2 if interleaved else 1)
    n_blocks = min(len(samples) // block_size, meter.capacity)

    if len(samples):
        session.info(f"Signal: {len(samples)} samples, rms={rms(samples):.4f}, peak={peak(samples):.4f}")
    if n_blocks == 0:
        session.warning(f"Signal shorter than one block ({block_size} samples)")

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=30),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Metering blocks", total=n_blocks)

        for i in range(n_blocks):
            block = samples[i * block_size:(i + 1) * block_size]
            if interleaved:
                level = meter.process_interleaved(block)
            else:
                level = meter.process(block)
            session.log_block(i, level, meter.peak_frequency)
            progress.update(task, advance=1)

    if meter.is_full:
        console.print(f"[yellow]Capacity of {meter.capacity} levels reached[/yellow]")

    console.print("\n")
    display_results_table(meter)

    results = {
        'timestamp': datetime.now().isoformat(),
        'config': config.to_dict(),
        'summary': meter.summary(),
        **meter.to_dict(),
    }

    with open(output_dir / 'levels.json', 'w') as f:
        json.dump(results, f, indent=2, allow_nan=False)

    session.log_results(meter.summary())
    session.close()
    console.print(f"\n[green]✓[/green] Results saved to {output_dir}")

    return meter


def main():
    parser = argparse.ArgumentParser(description="FFT Sound Level Meter")
    parser.add_argument(
        '--config',
        type=str,
        default=str(PROJECT_ROOT / 'configs' / 'default.yaml'),
        help='Path to configuration file'
    )
    parser.add_argument('--input', type=str, default=None, help='WAV file to meter')
    parser.add_argument('--tone', type=float, default=1000.0, help='Synthetic tone frequency (Hz) when no input')
    parser.add_argument('--amplitude', type=float, default=0.1, help='Synthetic tone amplitude')
    parser.add_argument('--duration', type=float, default=10.0, help='Synthetic tone duration (s)')
    parser.add_argument('--output', type=str, default=None, help='Output directory')
    args = parser.parse_args()

    config = load_config(args.config) if Path(args.config).exists() else MeterConfig()

    if args.input:
        sample_rate, samples, interleaved = read_wav(args.input)
        if sample_rate != config.sample_rate:
            console.print(f"[yellow]Using file sample rate {sample_rate} Hz[/yellow]")
            config = replace(config, sample_rate=float(sample_rate))
        source = args.input
    else:
        samples = synth_tone(args.tone, args.amplitude, args.duration, config.sample_rate)
        interleaved = False
        source = f"{args.tone:g} Hz tone, amplitude {args.amplitude:g}"

    if args.output:
        output_dir = Path(args.output)
    else:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        output_dir = PROJECT_ROOT / 'results' / 'level_meter' / timestamp

    console.print(Panel.fit(
        "[bold blue]FFT Level Meter[/bold blue]\n"
        f"Source: {source}\n"
        f"Block: {config.buffer_size} @ {config.sample_rate:g} Hz",
        border_style="blue"
    ))

    try:
        run_level_meter(config, samples, interleaved, output_dir)
        console.print(Panel.fit(
            "[bold green]Metering completed![/bold green]",
            border_style="green"
        ))
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise


if __name__ == '__main__':
    main()

"""CLI entry point for live-scribe."""

from __future__ import annotations

import logging
import sys

import click

from live_scribe import __version__
from live_scribe.l1_entities.errors import DeviceEnumerationError, InvalidDeviceError, NoInputDevicesError

log = logging.getLogger('scribe.cli')


@click.command()
@click.option(
    '-c',
    '--config',
    'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help='Path to YAML tuning config file.',
)
@click.option(
    '-d',
    '--device',
    default=None,
    help='Input device to capture from, by index or exact name (see --list-devices).',
)
@click.option('--list-devices', is_flag=True, help='List input devices and exit.')
@click.version_option(version=__version__)
def cli(config_path, device, list_devices):
    """live-scribe -- live, speaker-attributed transcription in the terminal."""
    import yaml  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help

    from live_scribe.l2_use_cases.device_resolution import (  # noqa: PLC0415 -- deferred: not needed for --help
        parse_device_selection,
    )
    from live_scribe.l3_interface_adapters.gateways.yaml_config_loader import (  # noqa: PLC0415 -- deferred: yaml stack not loaded on --help
        YamlConfigLoader,
    )
    from live_scribe.l4_frameworks_and_drivers.config import (  # noqa: PLC0415 -- deferred: not needed for --help
        build_app_config,
    )
    from live_scribe.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: sounddevice and Textual not loaded for --help
        DependencyContainer,
    )

    try:
        raw = YamlConfigLoader().load_raw(config_path)
        config = build_app_config(raw)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        click.echo(f'Error: invalid config: {e}', err=True)
        sys.exit(1)

    try:
        device_names = DependencyContainer.device_catalog().list_input_devices()
    except (NoInputDevicesError, DeviceEnumerationError) as e:
        click.echo(f'Error: cannot start audio capture: {e}', err=True)
        sys.exit(1)

    if list_devices:
        for index, name in enumerate(device_names):
            click.echo(f'{index}: {name}')
        return

    device_index = None
    if device is not None:
        try:
            device_index = parse_device_selection(device, device_names)
        except InvalidDeviceError as e:
            click.echo(f'Error: {e}', err=True)
            click.echo('Run with --list-devices to see the available inputs.', err=True)
            sys.exit(1)

    from live_scribe.l3_interface_adapters.gateways.paths import (  # noqa: PLC0415 -- deferred: platformdirs not needed for --help
        LOG_DIR,
    )
    from live_scribe.l4_frameworks_and_drivers.apps.app import (  # noqa: PLC0415 -- deferred: Textual TUI not loaded for --help or --list-devices
        LiveScribeApp,
    )
    from live_scribe.l4_frameworks_and_drivers.logging_setup import (  # noqa: PLC0415 -- deferred: not needed for --help
        setup_file_logging,
    )

    setup_file_logging(LOG_DIR)
    log.info('live-scribe %s starting with %d input device(s)', __version__, len(device_names))
    container = DependencyContainer(config, device_names, device_index=device_index)
    app = LiveScribeApp(container)
    app.run()
    if app.fatal_error:
        click.echo(f'Error: {app.fatal_error}', err=True)
        sys.exit(1)

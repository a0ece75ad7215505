# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the dnntrain CLI.

Each handler takes the parsed argparse namespace and returns an exit code.
Handlers never print; everything goes through the structured logger, except
the progress table, which the training controller writes to stdout.
"""

import argparse
import logging
from pathlib import Path

from dnntrain.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, VALIDATION_ERROR
from dnntrain.config.exceptions import ConfigError
from dnntrain.config.loader import load_config
from dnntrain.config.schema import DnnTrainConfig
from dnntrain.logging.logger import get_logger
from dnntrain.runtime.bootstrap import bootstrap


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, DnnTrainConfig | None, logging.Logger]:
    """
    The shared setup every command needs: load config, run bootstrap.

    Returns a tuple of (exit_code, config, logger). If exit_code is not
    SUCCESS the caller returns it immediately.
    """
    logger = get_logger(f"dnntrain.cli.{command_name}", log_level=args.log_level)

    config = None
    if args.config is not None:
        try:
            config = load_config(Path(args.config), overrides=args.overrides or ())
        except ConfigError as err:
            logger.error(
                "Configuration error",
                extra={"command": command_name, "error": str(err)},
            )
            return CONFIG_ERROR, None, logger
    elif args.overrides:
        logger.error(
            "--set needs a config file to override",
            extra={"command": command_name, "overrides": args.overrides},
        )
        return CONFIG_ERROR, None, logger

    if config is not None:
        bootstrap(config.global_config)
    else:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )

    if args.seed is not None:
        from dnntrain.runtime.bootstrap import set_deterministic_seed

        set_deterministic_seed(args.seed)

    return SUCCESS, config, logger


def _default_model_out(training_set_file: str) -> Path:
    """'<training file name>.model' in the working directory."""
    return Path(Path(training_set_file).name + ".model")


def handle_train(args: argparse.Namespace) -> int:
    """Train a model on the configured dataset and save it."""
    exit_code, config, logger = _load_and_bootstrap(args, "train")
    if exit_code != SUCCESS:
        return exit_code

    if config is None or config.data is None or config.model is None or config.train is None:
        logger.error(
            "Data, model and train config sections are required",
            extra={"command": "train"},
        )
        return CONFIG_ERROR

    seed = args.seed if args.seed is not None else config.global_config.seed
    data_cfg, model_cfg, train_cfg = config.data, config.model, config.train

    if args.dry_run:
        logger.info(
            "Dry run, would start training",
            extra={
                "training_set_file": data_cfg.training_set_file,
                "max_epoch": train_cfg.max_epoch,
                "batch_size": train_cfg.batch_size,
                "error_measure": train_cfg.error_measure,
            },
        )
        return SUCCESS

    from dnntrain.data.dataset import DataFormatError, NormType, load_dataset, split
    from dnntrain.model.network import build_model
    from dnntrain.model.persistence import load_model, save_model
    from dnntrain.runtime.device import configure_device
    from dnntrain.training.engine.core import EpochController, check_datasets
    from dnntrain.training.evaluation.core import ErrorMeasure
    from dnntrain.training.exceptions import TrainingError
    from dnntrain.training.metrics.core import ProgressTable

    try:
        resources = configure_device(config.runtime)
        measure = ErrorMeasure(train_cfg.error_measure)

        data = load_dataset(
            Path(data_cfg.training_set_file),
            input_dim=data_cfg.input_dim,
            label_base=data_cfg.label_base,
            measure=measure,
        ).normalize(NormType(data_cfg.normalize))
        train, valid = split(data, data_cfg.valid_ratio)
        check_datasets(train, valid)

        if model_cfg.model_in is not None:
            model = load_model(Path(model_cfg.model_in), train_cfg, device=resources.device)
        else:
            model = build_model(
                model_cfg,
                train_cfg,
                input_dim=data.input_dim,
                output_dim=data.num_classes,
                seed=seed,
                device=resources.device,
            )

        output_dim = model.layer_dims[-1]
        if measure is ErrorMeasure.CLASSIFICATION:
            output_fits = output_dim >= data.num_classes
        else:
            output_fits = output_dim == data.num_classes
        if model.layer_dims[0] != data.input_dim or not output_fits:
            logger.error(
                "Model shape does not match the dataset",
                extra={
                    "model_layer_dims": model.layer_dims,
                    "data_input_dim": data.input_dim,
                    "data_outputs": data.num_classes,
                },
            )
            return VALIDATION_ERROR

        controller = EpochController(
            model,
            train,
            valid,
            train_cfg,
            progress=ProgressTable(enabled=train_cfg.progress_table),
            seed=seed,
        )
        result = controller.run()

        model_out = (
            Path(model_cfg.model_out)
            if model_cfg.model_out is not None
            else _default_model_out(data_cfg.training_set_file)
        )
        save_model(
            model,
            model_out,
            training={
                "state": result.state.value,
                "epochs_run": result.epochs_run,
                "train_accuracy": result.final_train_accuracy,
                "valid_accuracy": result.final_valid_accuracy,
            },
        )

        logger.info(
            "Training complete",
            extra={
                "state": result.state.value,
                "epochs_run": result.epochs_run,
                "elapsed_s": round(result.elapsed_seconds, 3),
                "model_out": str(model_out),
            },
        )
        return SUCCESS

    except (TrainingError, DataFormatError, FileNotFoundError) as err:
        logger.error("Training precondition failed", extra={"error": str(err)})
        return VALIDATION_ERROR
    except Exception as err:
        logger.error("Training failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_info(args: argparse.Namespace) -> int:
    """Display environment, device and configuration information."""
    exit_code, config, logger = _load_and_bootstrap(args, "info")
    if exit_code != SUCCESS:
        return exit_code

    from dnntrain import __version__
    from dnntrain.runtime.device import select_device
    from dnntrain.runtime.environment import get_system_info

    system_info = get_system_info()
    preference = config.runtime.device if config is not None and config.runtime is not None else "auto"

    try:
        device = str(select_device(preference))
    except RuntimeError as err:
        logger.error("Device unavailable", extra={"error": str(err)})
        return RUNTIME_ERROR

    logger.info(
        "System information",
        extra={
            "dnntrain_version": __version__,
            **system_info.log_fields(),
            "device": device,
            "config": args.config,
        },
    )
    return SUCCESS

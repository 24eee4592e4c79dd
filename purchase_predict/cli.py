#!filepath: purchase_predict/cli.py
from pathlib import Path
from typing import Optional

import typer
from rich import print

from purchase_predict import __version__, init_logging
from purchase_predict.config.app_config import AppConfig
from purchase_predict.data.csv_loader import load_events
from purchase_predict.utils.errors import PurchasePredictError, UserInputError

app = typer.Typer(help="Purchase prediction CLI (tree boosting over e-commerce events)")


def _load_config(config: Optional[Path]) -> AppConfig:
    try:
        return AppConfig.load(str(config) if config else None)
    except FileNotFoundError as e:
        raise UserInputError(str(e)) from e


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def train(
        config: Optional[Path] = typer.Option(None, help="YAML config (default: bundled base.yml)"),
        data: Optional[Path] = typer.Option(None, help="Event log CSV, overrides data.path"),
        max_rows: Optional[int] = typer.Option(None, help="Read at most this many rows"),
        persist: bool = typer.Option(False, "--persist", help="Write the model artifact"),
):
    """
    Train on the event log, print metrics, verdict and the sample prediction.
    """
    from purchase_predict.training.steps.model_report_step import format_metrics
    from purchase_predict.workflows.offline_training import build_offline_training, new_run_id

    try:
        cfg = _load_config(config)
    except UserInputError as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)
    init_logging(cfg.log)

    if persist:
        cfg.training.persist_artifact = True

    path = data or Path(cfg.data.path)
    try:
        events = load_events(path, separator=cfg.data.separator, max_rows=max_rows or cfg.data.max_rows)
    except FileNotFoundError as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    run_id = new_run_id()
    print(f"[green]Training run {run_id} on {len(events)} events[/green]")

    try:
        ctx = build_offline_training(cfg).run(events, run_id)
    except PurchasePredictError as e:
        print(f"[red]{type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1)

    for line in format_metrics(ctx.evaluation):
        print(line)
    print(ctx.verdict)
    if ctx.sample_prediction is not None:
        print(f"Predicted purchase: {ctx.sample_prediction}")
    if ctx.model_artifact is not None:
        print(f"[blue]Artifact: {ctx.model_artifact.path}[/blue]")


@app.command()
def predict(
        artifact: Path = typer.Argument(..., help="Artifact directory written by `train --persist`"),
        product_id: float = typer.Option(...),
        category_id: float = typer.Option(...),
        price: float = typer.Option(...),
        user_id: float = typer.Option(...),
):
    """
    Score one feature vector with a persisted model.
    """
    from purchase_predict.inference.artifact import load_artifact
    from purchase_predict.inference.inference_engine import InferenceEngine

    try:
        model = load_artifact(artifact)
    except PurchasePredictError as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    engine = InferenceEngine()
    features = (product_id, category_id, price, user_id)
    try:
        proba = engine.features_proba(features, model.params, model.ensemble)
    except PurchasePredictError as e:
        print(f"[red]{e}[/red]")
        raise typer.Exit(code=2)

    print(f"Purchase probability: {proba:.4f}")
    print(f"Predicted purchase: {engine.predict_features(features, model.params, model.ensemble)}")


if __name__ == "__main__":
    app()

# python -m purchase_predict.cli train --max-rows 100000

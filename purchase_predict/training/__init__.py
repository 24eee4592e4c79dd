"""
Training (FINAL / FROZEN)

One paradigm only: batch training on a finite, fully materialized
event log.

------------------------------------------------------------
Run shape
------------------------------------------------------------

    events
      → FeatureDeriveStep     (label + fixed 4-feature vector)
      → DatasetSplitStep      (seeded, non-stratified)
      → NormalizeStep         (min-max fitted on TRAIN only)
      → ModelTrainStep        (gradient-boosted trees)
      → ModelEvaluateStep     (accuracy / AUC / F1 on TEST)
      → ModelReportStep       (advisory verdict)
      → ArtifactPersistStep   (optional)
      → SamplePredictStep     (optional)

------------------------------------------------------------
Guarantees
------------------------------------------------------------

- Test rows never influence normalization or training.
- Re-running with the same events and config yields a bit-identical
  ensemble.
- Any step error aborts the run; no partially trained model is
  published to the context.

Non-goals:
- Online / incremental updates
- Hyperparameter search
- Any target other than "is this event a purchase"
"""

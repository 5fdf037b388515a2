"""Click CLI: ``nspi-fill`` command group."""

from __future__ import annotations

import click
from loguru import logger

from nspi_fill.config import load_config
from nspi_fill.exit_codes import ExitCode, exit_code_from_report
from nspi_fill.logging import bind_run_context, new_run_id, setup_logging


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group(invoke_without_command=True)
@click.version_option(package_name="nspi-fill", prog_name="nspi-fill")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True),
              help="Path to YAML config.")
@click.option("--log-level", default="INFO",
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.option("--log-format", default="text",
              type=click.Choice(["text", "json"]),
              help="Log output format.")
@click.option("--log-file", default=None, help="Also append logs to this file.")
@click.option("--run-id", default=None, help="Override auto-generated run ID.")
@click.option("--show-config", is_flag=True, help="Print resolved config as YAML and exit.")
@click.pass_context
def nspi_fill(ctx: click.Context, config_path, log_level, log_format, log_file, run_id, show_config):
    """Fill clouds in a satellite image from a clear reference image."""
    ctx.ensure_object(dict)

    # Logging with run context
    setup_logging(level=log_level, fmt=log_format, log_file=log_file)
    run_id = run_id or new_run_id()
    ctx.obj["run_id"] = run_id
    bind_run_context(run_id)

    try:
        ctx.obj["cfg"] = load_config(config_path)
    except (ValueError, TypeError) as exc:
        logger.error(f"Invalid config: {exc}")
        ctx.exit(ExitCode.BAD_INPUT)
        return

    if show_config:
        import dataclasses
        import yaml as _yaml
        click.echo(_yaml.dump(dataclasses.asdict(ctx.obj["cfg"]), default_flow_style=False))
        ctx.exit(ExitCode.SUCCESS)
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# fill
# ---------------------------------------------------------------------------

@nspi_fill.command()
@click.argument("cloudy_path", metavar="CLOUDY", type=click.Path(exists=True))
@click.argument("clear_path", metavar="CLEAR", type=click.Path(exists=True))
@click.argument("mask_path", metavar="MASK", type=click.Path(exists=True))
@click.option("-o", "--output", required=True, help="Output raster (.tif or .npy).")
@click.option("--num-class", type=int, default=None, help="Expected number of land-cover classes.")
@click.option("--min-pixel", type=int, default=None, help="Similar pixels used per target.")
@click.option("--cloud-nbh", type=int, default=None, help="Search margin around each cloud (px).")
@click.option("--dn-min", type=float, default=None, help="Minimum valid value (exclusive).")
@click.option("--dn-max", type=float, default=None, help="Maximum valid value (exclusive).")
@click.option("--similarity-reference", default=None,
              type=click.Choice(["loop_index", "target"]),
              help="Clear vector the similarity test compares against.")
@click.option("--max-workers", type=int, default=None, help="Regions filled in parallel.")
@click.option("--binary-mask", is_flag=True,
              help="MASK is a 0/1 cloud mask; label connected clouds first.")
@click.option("--missing", "missing_path", default=None, type=click.Path(exists=True),
              help="With --binary-mask: 0/1 mask of pixels missing in CLEAR.")
@click.option("--report-dir", default=None, help="Write JSON/CSV/text region reports here.")
@click.option("--dry-run", is_flag=True, help="List cloud regions without filling.")
@click.pass_context
def fill(ctx, cloudy_path, clear_path, mask_path, output, num_class, min_pixel, cloud_nbh,
         dn_min, dn_max, similarity_reference, max_workers, binary_mask, missing_path,
         report_dir, dry_run):
    """Fill cloud pixels of CLOUDY using CLEAR and the cloud MASK."""
    from nspi_fill.interpolation import cloud_ids, fill_clouds
    from nspi_fill.io import check_suffix, read_image, read_mask, write_image
    from nspi_fill.masks import label_cloud_mask
    from nspi_fill.tracking import FillReport

    cfg = ctx.obj["cfg"]
    params = cfg.nspi
    num_class = num_class if num_class is not None else params.num_class
    min_pixel = min_pixel if min_pixel is not None else params.min_pixel
    cloud_nbh = cloud_nbh if cloud_nbh is not None else params.cloud_nbh
    dn_min = dn_min if dn_min is not None else params.dn_min
    dn_max = dn_max if dn_max is not None else params.dn_max
    similarity_reference = similarity_reference or params.similarity_reference
    max_workers = max_workers if max_workers is not None else cfg.execution.max_workers
    report_dir = report_dir or cfg.report_dir

    try:
        check_suffix(output)
        cloudy, profile = read_image(cloudy_path)
        clear, _ = read_image(clear_path)
        mask, _ = read_mask(mask_path)
        if binary_mask:
            missing = read_mask(missing_path)[0] if missing_path else None
            mask = label_cloud_mask(mask, missing=missing)
        elif missing_path:
            logger.warning("--missing is only used together with --binary-mask; ignoring it")
    except ValueError as exc:
        logger.error(f"Bad input: {exc}")
        ctx.exit(ExitCode.BAD_INPUT)
        return

    ids = cloud_ids(mask)
    logger.info(f"{len(ids)} cloud regions in {mask_path}")

    if dry_run:
        click.echo(f"Image: {cloudy.shape[0]}x{cloudy.shape[1]}, {cloudy.shape[2]} bands")
        click.echo(f"Cloud regions: {len(ids)}")
        click.echo(
            f"Parameters: num_class={num_class}, min_pixel={min_pixel}, "
            f"cloud_nbh={cloud_nbh}, dn_min={dn_min}, dn_max={dn_max}"
        )
        ctx.exit(ExitCode.SUCCESS)
        return

    report = FillReport(report_dir)
    try:
        filled = fill_clouds(
            cloudy, clear, mask,
            num_class=num_class, min_pixel=min_pixel, cloud_nbh=cloud_nbh,
            dn_min=dn_min, dn_max=dn_max,
            similarity_reference=similarity_reference,
            max_workers=max_workers,
            report=report,
        )
    except ValueError as exc:
        logger.error(f"Bad input: {exc}")
        ctx.exit(ExitCode.BAD_INPUT)
        return
    except Exception:
        logger.exception("Cloud fill aborted")
        if report_dir:
            report.save_reports()
        ctx.exit(ExitCode.TOTAL_FAILURE)
        return

    try:
        write_image(output, filled, profile)
    except ValueError as exc:
        logger.error(f"Cannot write output: {exc}")
        ctx.exit(ExitCode.BAD_INPUT)
        return
    report.print_summary()
    if report_dir:
        report.save_reports()

    ctx.exit(exit_code_from_report(report))


# ---------------------------------------------------------------------------
# regions
# ---------------------------------------------------------------------------

@nspi_fill.command()
@click.argument("mask_path", metavar="MASK", type=click.Path(exists=True))
@click.option("--cloud-nbh", type=int, default=None, help="Search margin around each cloud (px).")
@click.pass_context
def regions(ctx, mask_path, cloud_nbh):
    """List cloud ids in MASK with pixel counts and search windows."""
    from nspi_fill.io import read_mask
    from nspi_fill.masks import describe_regions

    cfg = ctx.obj["cfg"]
    cloud_nbh = cloud_nbh if cloud_nbh is not None else cfg.nspi.cloud_nbh

    try:
        mask, _ = read_mask(mask_path)
    except ValueError as exc:
        logger.error(f"Bad input: {exc}")
        ctx.exit(ExitCode.BAD_INPUT)
        return

    rows = describe_regions(mask, cloud_nbh=cloud_nbh)
    if not rows:
        click.echo("No cloud regions")
        ctx.exit(ExitCode.NO_WORK)
        return

    click.echo(f"{'id':>6} {'pixels':>8} {'clear':>8}  window (rows, cols)")
    for r in rows:
        click.echo(
            f"{r['cloud_id']:>6} {r['n_pixels']:>8} {r['n_clear']:>8}  "
            f"[{r['up_row']}:{r['down_row']}], [{r['left_col']}:{r['right_col']}]"
        )
        if r["n_clear"] == 0:
            logger.warning(f"Cloud {r['cloud_id']} has no clear pixels in its window")
    ctx.exit(ExitCode.SUCCESS)


# ---------------------------------------------------------------------------
# label
# ---------------------------------------------------------------------------

@nspi_fill.command()
@click.argument("binary_mask_path", metavar="BINARY_MASK", type=click.Path(exists=True))
@click.option("-o", "--output", required=True, help="Labelled mask output (.tif or .npy).")
@click.option("--missing", "missing_path", default=None, type=click.Path(exists=True),
              help="0/1 mask of pixels missing in the clear image (coded -1).")
@click.option("--buffer", type=int, default=0, help="Dilate clouds by this many pixels.")
@click.option("--min-size", type=int, default=0, help="Drop cloud patches smaller than this.")
@click.option("--connectivity", type=click.Choice(["4", "8"]), default="8")
@click.pass_context
def label(ctx, binary_mask_path, output, missing_path, buffer, min_size, connectivity):
    """Turn a 0/1 cloud mask into a -1/0/id cloud mask."""
    from nspi_fill.io import check_suffix, read_mask, write_image
    from nspi_fill.masks import label_cloud_mask

    try:
        check_suffix(output)
        cloud, profile = read_mask(binary_mask_path)
        missing = read_mask(missing_path)[0] if missing_path else None
        labelled = label_cloud_mask(
            cloud, missing=missing, buffer=buffer, min_size=min_size,
            connectivity=1 if connectivity == "4" else 2,
        )
    except ValueError as exc:
        logger.error(f"Bad input: {exc}")
        ctx.exit(ExitCode.BAD_INPUT)
        return

    try:
        write_image(output, labelled, profile)
    except ValueError as exc:
        logger.error(f"Cannot write output: {exc}")
        ctx.exit(ExitCode.BAD_INPUT)
        return
    ctx.exit(ExitCode.SUCCESS if labelled.max(initial=0) > 0 else ExitCode.NO_WORK)

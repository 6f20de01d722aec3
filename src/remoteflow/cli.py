import click


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Print one line per fetch, skip and rejection decision to stderr.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: $XDG_CONFIG_HOME/remoteflow/config.yaml).",
)
@click.pass_context
def cli(ctx, verbose, config_path):
    """
    remoteflow - fetch agentic workflows together with their includes and imports
    """
    from .config import load_settings
    from .runtime import reset_verbose_logging, set_verbose_logging

    ctx.ensure_object(dict)
    token = set_verbose_logging(verbose)
    ctx.call_on_close(lambda: reset_verbose_logging(token))
    try:
        ctx.obj["settings"] = load_settings(config_path)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj["verbose"] = verbose


def _make_source(ctx: click.Context):
    source = ctx.obj.get("source")
    if source is not None:
        return source
    from .github.client import GitHubClient

    return GitHubClient(ctx.obj["settings"])


@cli.command("add")
@click.argument("specs", nargs=-1, required=True)
@click.option(
    "--dir",
    "target_dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory to write workflows into (default: .github/workflows)",
)
@click.option("--force", is_flag=True, help="Overwrite files that already exist")
@click.option(
    "--no-includes", is_flag=True, help="Do not fetch @include directives"
)
@click.option(
    "--no-imports", is_flag=True, help="Do not fetch frontmatter imports"
)
@click.option(
    "--stage", is_flag=True, help="Stage written files with git add"
)
@click.pass_context
def add_cmd(ctx, specs, target_dir, force, no_includes, no_imports, stage):
    """
    Add workflows from owner/repo/path[@ref] specs or local paths.
    """
    from .install import add_workflow
    from .references.spec import parse_workflow_spec
    from .tracker import FileTracker

    target_dir = target_dir or ctx.obj["settings"].target_dir
    source = _make_source(ctx)
    tracker = FileTracker.for_path(target_dir)

    try:
        parsed = [parse_workflow_spec(spec) for spec in specs]
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    results = []
    for spec in parsed:
        try:
            results.append(
                add_workflow(
                    spec,
                    target_dir,
                    force=force,
                    tracker=tracker,
                    source=source,
                    fetch_includes=not no_includes,
                    fetch_imports=not no_imports,
                )
            )
        except (ValueError, OSError) as exc:
            tracker.rollback()
            raise click.ClickException(str(exc)) from exc

    for result in results:
        origin = result.source_path
        if result.commit_sha:
            origin = f"{origin}@{result.commit_sha[:7]}"
        extra = len(result.written_files) - 1
        suffix = f" (+{extra} dependencies)" if extra > 0 else ""
        click.echo(f"Added {result.workflow_path} from {origin}{suffix}")

    if stage:
        import subprocess

        try:
            tracker.stage_all()
        except (subprocess.CalledProcessError, FileNotFoundError) as exc:
            raise click.ClickException(f"git add failed: {exc}") from exc


@cli.command("show")
@click.argument("spec")
@click.pass_context
def show_cmd(ctx, spec):
    """
    Print a workflow file without writing anything.
    """
    from .references.spec import parse_workflow_spec
    from .resolve.workflow import fetch_workflow

    try:
        fetched = fetch_workflow(parse_workflow_spec(spec), source=_make_source(ctx))
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    if ctx.obj.get("verbose"):
        origin = fetched.source_path
        if fetched.commit_sha:
            origin = f"{origin}@{fetched.commit_sha}"
        click.echo(f"# source: {origin}", err=True)
    click.echo(fetched.text(), nl=not fetched.content.endswith(b"\n"))


def main():
    cli()


if __name__ == "__main__":
    main()

"""Record commands -- beads, serological equivalences, serotypes and ARD reductions.

Every data category gets its own sub-command group mirroring the client::

    hatx bead get 'A*01:01'
    hatx bead filter --serotype A1 --manufacturer ONE_LAMBDA
    hatx serological query 'A*01:01' 'B*08:01' --refresh-data
    hatx serotype get 'A*01:01' --version 2
    hatx ard reduce 'A*01:01:01:01' --group g_group

``--refresh-data`` asks the server to recompute before answering; the result
is not taken from or stored in the local cache.
"""

from __future__ import annotations

from typing import List, Optional

import typer

from hatx.commands.runner import run_with_service
from hatx.models import (
    ArdGroup,
    ArdReduceQuery,
    BeadFilterQuery,
    BeadQuery,
    Manufacturer,
    RequestOptions,
    SerologicalQuery,
    SerotypeFilterQuery,
    SerotypeQuery,
)
from hatx.output import get_output

bead_app = typer.Typer(no_args_is_help=True)
serological_app = typer.Typer(no_args_is_help=True)
serotype_app = typer.Typer(no_args_is_help=True)
ard_app = typer.Typer(no_args_is_help=True)

_REFRESH_HELP = "Ask the server to recompute the data before answering."


# ------------------------------------------------------------------ #
# Beads
# ------------------------------------------------------------------ #


@bead_app.command("get")
def bead_get(
    ctx: typer.Context,
    allele: str = typer.Argument(help="Allele name, e.g. 'A*01:01'."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """List the beads carrying one allele."""
    options = RequestOptions(refresh_data=refresh_data)
    beads = run_with_service(ctx, lambda s: s.get_bead_by_allele(allele, options))
    get_output().print_records(beads, title=f"Beads for {allele}")


@bead_app.command("query")
def bead_query(
    ctx: typer.Context,
    alleles: List[str] = typer.Argument(help="One or more allele names."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """List the beads for several alleles."""
    options = RequestOptions(refresh_data=refresh_data)
    beads = run_with_service(ctx, lambda s: s.query_beads(BeadQuery(alleles=alleles), options))
    get_output().print_records(beads, title="Beads")


@bead_app.command("filter")
def bead_filter(
    ctx: typer.Context,
    allele: Optional[str] = typer.Option(None, help="Allele name."),
    antigen: Optional[str] = typer.Option(None, help="Antigen name."),
    serotype: Optional[str] = typer.Option(None, help="Serotype."),
    serotype_from_allele: Optional[str] = typer.Option(
        None, help="Serotype derived from this allele."
    ),
    comment: Optional[str] = typer.Option(None, help="Comment text."),
    manufacturer: Optional[Manufacturer] = typer.Option(None, help="Kit manufacturer."),
    version: Optional[int] = typer.Option(None, help="Assignment table version."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """List the beads matching every given criterion."""
    query = BeadFilterQuery(
        allele=allele,
        antigen=antigen,
        serotype=serotype,
        serotype_from_allele=serotype_from_allele,
        comment=comment,
        manufacturer=manufacturer,
        version=version,
    )
    options = RequestOptions(refresh_data=refresh_data)
    beads = run_with_service(ctx, lambda s: s.filter_beads(query, options))
    get_output().print_records(beads, title="Beads")


# ------------------------------------------------------------------ #
# Serological equivalences
# ------------------------------------------------------------------ #


@serological_app.command("get")
def serological_get(
    ctx: typer.Context,
    allele: str = typer.Argument(help="Allele name, e.g. 'A*01:01'."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """Show the serological equivalents of one allele."""
    options = RequestOptions(refresh_data=refresh_data)
    records = run_with_service(ctx, lambda s: s.get_serological_by_allele(allele, options))
    get_output().print_records(records, title=f"Serological equivalents of {allele}")


@serological_app.command("query")
def serological_query(
    ctx: typer.Context,
    alleles: List[str] = typer.Argument(help="One or more allele names."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """Show the serological equivalents of several alleles."""
    options = RequestOptions(refresh_data=refresh_data)
    records = run_with_service(
        ctx, lambda s: s.query_serological(SerologicalQuery(alleles=alleles), options)
    )
    get_output().print_records(records, title="Serological equivalents")


# ------------------------------------------------------------------ #
# Serotypes
# ------------------------------------------------------------------ #


@serotype_app.command("get")
def serotype_get(
    ctx: typer.Context,
    allele: str = typer.Argument(help="Allele name, e.g. 'A*01:01'."),
    version: Optional[int] = typer.Option(None, help="Assignment table version (latest if omitted)."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """Show the serotype assignments of one allele."""
    options = RequestOptions(refresh_data=refresh_data)
    records = run_with_service(ctx, lambda s: s.get_serotype_by_allele(allele, version, options))
    get_output().print_records(records, title=f"Serotypes of {allele}")


@serotype_app.command("query")
def serotype_query(
    ctx: typer.Context,
    alleles: List[str] = typer.Argument(help="One or more allele names."),
    version: Optional[int] = typer.Option(None, help="Assignment table version."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """Show the serotype assignments of several alleles."""
    query = SerotypeQuery(alleles=alleles, version=version)
    options = RequestOptions(refresh_data=refresh_data)
    records = run_with_service(ctx, lambda s: s.query_serotypes(query, options))
    get_output().print_records(records, title="Serotypes")


@serotype_app.command("filter")
def serotype_filter(
    ctx: typer.Context,
    allele: Optional[str] = typer.Option(None, help="Allele name."),
    antigen: Optional[str] = typer.Option(None, help="Antigen name."),
    serotype: Optional[str] = typer.Option(None, help="Serotype."),
    serotype_from_allele: Optional[str] = typer.Option(
        None, help="Serotype derived from this allele."
    ),
    comment: Optional[str] = typer.Option(None, help="Comment text."),
    manufacturer: Optional[Manufacturer] = typer.Option(None, help="Kit manufacturer."),
    n_field: Optional[int] = typer.Option(None, help="Allele resolution in fields."),
    version: Optional[int] = typer.Option(None, help="Assignment table version."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """Show the serotype assignments matching every given criterion."""
    query = SerotypeFilterQuery(
        allele=allele,
        antigen=antigen,
        serotype=serotype,
        serotype_from_allele=serotype_from_allele,
        comment=comment,
        manufacturer=manufacturer,
        n_field=n_field,
        version=version,
    )
    options = RequestOptions(refresh_data=refresh_data)
    records = run_with_service(ctx, lambda s: s.filter_serotypes(query, options))
    get_output().print_records(records, title="Serotypes")


# ------------------------------------------------------------------ #
# ARD reduction
# ------------------------------------------------------------------ #


@ard_app.command("get")
def ard_get(
    ctx: typer.Context,
    allele: str = typer.Argument(help="Allele name, e.g. 'A*01:01:01:01'."),
    group: Optional[ArdGroup] = typer.Option(None, help="Reduction group."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """Reduce one allele to its antigen-recognition-domain group."""
    options = RequestOptions(refresh_data=refresh_data)
    records = run_with_service(ctx, lambda s: s.get_ard_reduction(allele, group, options))
    get_output().print_records(records, title=f"ARD reduction of {allele}")


@ard_app.command("reduce")
def ard_reduce(
    ctx: typer.Context,
    alleles: List[str] = typer.Argument(help="One or more allele names."),
    group: Optional[ArdGroup] = typer.Option(None, help="Reduction group."),
    refresh_data: bool = typer.Option(False, "--refresh-data", help=_REFRESH_HELP),
) -> None:
    """Reduce several alleles at once."""
    query = ArdReduceQuery(alleles=alleles, group=group)
    options = RequestOptions(refresh_data=refresh_data)
    records = run_with_service(ctx, lambda s: s.reduce_alleles(query, options))
    get_output().print_records(records, title="ARD reductions")

import asyncio
import sys
from typing import Optional

import bittensor as bt

from snarkbuild import cli_parser
from snarkbuild.pipeline import SnarkPipeline
from snarkbuild.utils.logging import log_run_report
from snarkbuild.utils.pre_flight import run_preflight_checks


def main(args: Optional[list[str]] = None) -> int:
    config = cli_parser.init_config(args)
    build_config = cli_parser.build_config_from_args(config)

    if not config.skip_preflight:
        run_preflight_checks(
            build_config.compiler_binary,
            build_config.prover_binary,
            build_config.root_dir,
        )

    bt.logging.info(f"Writing circuit artifacts to {build_config.output_dir}")
    report = asyncio.run(SnarkPipeline.from_config(build_config).run(build_config))
    log_run_report(report)
    for error in report.errors:
        bt.logging.error(f"Build aborted: {error}")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())

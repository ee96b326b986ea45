import argparse
import sys

from . import config
from .errors import OTAServerError
from .server import run
from .session import OPTIONS
from .utils.logging import error, setLevel


def main(args: list[str] | None = None) -> int:
	parser = argparse.ArgumentParser(
		prog="otaserve",
		description="Serves application packages to devices on the local network",
		formatter_class=argparse.ArgumentDefaultsHelpFormatter,  # Shows default values in help
	)
	parser.add_argument("files", nargs="+", metavar="FILE", help="Files to publish")
	parser.add_argument(
		"--host",
		action="store",
		dest="host",
		help="Interface to listen on",
		default=config.HOST,
	)
	parser.add_argument(
		"-a",
		"--advertise",
		action="store",
		dest="advertise",
		help="Host to advertise in manifest URLs, detected when not given",
		default=config.ADVERTISE,
	)
	parser.add_argument(
		"-m",
		"--manifest",
		action="store",
		dest="manifest",
		help="Name under which the manifest is served",
		default=config.MANIFEST_NAME,
	)
	parser.add_argument(
		"--chunk-size",
		action="store",
		dest="chunkSize",
		type=int,
		help="Size of the chunks files are streamed by",
		default=config.CHUNK_SIZE,
	)
	parser.add_argument(
		"-q",
		"--quiet",
		action="store_true",
		help="Only logs warnings and errors",
	)
	options = parser.parse_args(args)
	if options.quiet:
		setLevel("warning")
	try:
		run(
			options.files,
			options=OPTIONS._replace(
				host=options.host,
				advertise=options.advertise,
				manifestName=options.manifest,
				chunkSize=options.chunkSize,
				logRequests=not options.quiet,
			),
		)
	except OTAServerError as e:
		error(f"Could not start: {e.message}", "STARTUP")
		return 1
	return 0


if __name__ == "__main__":
	sys.exit(main())

# EOF

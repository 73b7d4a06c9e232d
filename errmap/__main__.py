from errmap.extractor.cli import cli_main

raise SystemExit(cli_main())

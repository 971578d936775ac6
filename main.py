from fgtsbatch.run import main

if __name__ == "__main__":
    # Settings come from the environment (CDP_URL, EXCEL_KEYWORD, ...) and
    # may be overridden on the command line; see ``--help``.
    raise SystemExit(main())

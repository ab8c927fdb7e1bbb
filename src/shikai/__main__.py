from shikai.cli import main

raise SystemExit(main())

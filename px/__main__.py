from px.modules.cli import main

raise SystemExit(main())

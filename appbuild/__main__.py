from appbuild.cli import main

raise SystemExit(main())

import sys

from weather_lookup.main import main

sys.exit(main())

# Save this file as: main.py

from s2s_client.cli import main

if __name__ == "__main__":
    main()

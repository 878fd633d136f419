import numpy as np
import pandas as pd


def generate_mock_telemetry(num_riders=12, num_ticks=20, output_file="mock_rider_telemetry.csv"):
    """
    Generates rider position batches as the location subscription would deliver
    them: one row per rider present in a tick. Riders drift a little every tick
    and occasionally drop out (sensor off / went offline) and come back, so
    replaying the file exercises add, move and remove on the fleet map.
    """
    # Center around Asaba, Delta State
    CENTER_LAT = 6.2088
    CENTER_LNG = 6.7222

    # Start riders within ~4km of the center (roughly 0.04 degrees)
    lat = CENTER_LAT + np.random.uniform(-0.04, 0.04, size=num_riders)
    lng = CENTER_LNG + np.random.uniform(-0.04, 0.04, size=num_riders)

    data = []
    for tick in range(num_ticks):
        # ~100m random walk per tick
        lat = lat + np.random.normal(0, 0.001, size=num_riders)
        lng = lng + np.random.normal(0, 0.001, size=num_riders)
        # 85% chance a rider reports in this tick
        present = np.random.random(size=num_riders) < 0.85

        for index in range(num_riders):
            if not present[index]:
                continue
            data.append({
                "tick": tick,
                "rider_id": f"rider-{str(index + 1).zfill(3)}",
                "name": f"Rider {index + 1}",
                "lat": np.round(lat[index], 6),
                "lng": np.round(lng[index], 6),
            })

    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"Generated {len(df)} positions for {num_riders} riders over {num_ticks} ticks into '{output_file}'")

    print("\nRiders reporting per tick:")
    for tick, count in df.groupby("tick")["rider_id"].count().head(5).items():
        print(f"  tick {tick}: {count}")


if __name__ == "__main__":
    generate_mock_telemetry()
